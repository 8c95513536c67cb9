from __future__ import annotations

import asyncio
import sqlite3

from discord import Interaction, User, app_commands

from goldbot.config.runtime import get_app_config
from goldbot.config.settings import MAX_AMOUNT, OWNER_IDS
from goldbot.core.errors import PersistenceFailure
from goldbot.core.wagers import JOBS
from goldbot.services.commands import is_owner
from goldbot.services.ledger import LedgerService
from goldbot.services.messages import (
    FAILURE_MESSAGE,
    UNAUTHORIZED_MESSAGE,
    balance_message,
    claim_message,
    give_message,
    history_message,
)


async def _send(interaction: Interaction, text: str, *, ephemeral: bool = False) -> None:
    await interaction.response.send_message(text, ephemeral=ephemeral)


async def _claim(interaction: Interaction, ledger: LedgerService, action: str, job: str | None = None) -> None:
    try:
        result = await asyncio.to_thread(ledger.earn, str(interaction.user.id), action, job)
    except PersistenceFailure:
        await _send(interaction, FAILURE_MESSAGE, ephemeral=True)
        return
    await _send(interaction, claim_message(result), ephemeral=not result.granted)


def setup_economy(tree: app_commands.CommandTree, ledger: LedgerService) -> None:
    @tree.command(name="balance", description="Show your gold balance.")
    async def balance(interaction: Interaction) -> None:
        try:
            amount = await asyncio.to_thread(ledger.get_balance, str(interaction.user.id))
        except PersistenceFailure:
            await _send(interaction, FAILURE_MESSAGE, ephemeral=True)
            return
        await _send(interaction, balance_message(amount), ephemeral=True)

    @tree.command(name="dig", description="Dig for gold (30 minute cooldown).")
    async def dig(interaction: Interaction) -> None:
        await _claim(interaction, ledger, "dig")

    @tree.command(name="fish", description="Go fishing for gold (30 minute cooldown).")
    async def fish(interaction: Interaction) -> None:
        await _claim(interaction, ledger, "fish")

    @tree.command(name="work", description="Work a shift for gold (1 hour cooldown).")
    @app_commands.describe(job="Job to work; random when omitted.")
    @app_commands.choices(job=[app_commands.Choice(name=name, value=name) for name in JOBS])
    async def work(interaction: Interaction, job: app_commands.Choice[str] | None = None) -> None:
        await _claim(interaction, ledger, "work", job.value if job is not None else None)

    @tree.command(name="daily", description="Claim your daily bonus.")
    async def daily(interaction: Interaction) -> None:
        await _claim(interaction, ledger, "daily")

    @tree.command(name="weekly", description="Claim your weekly bonus.")
    async def weekly(interaction: Interaction) -> None:
        await _claim(interaction, ledger, "weekly")

    @tree.command(name="history", description="Show your most recent gold transactions.")
    async def history(interaction: Interaction) -> None:
        try:
            page_size = int(await asyncio.to_thread(get_app_config, "HISTORY_PAGE_SIZE"))
            entries = await asyncio.to_thread(ledger.get_history, str(interaction.user.id), page_size)
        except (PersistenceFailure, sqlite3.Error):
            await _send(interaction, FAILURE_MESSAGE, ephemeral=True)
            return
        await _send(interaction, history_message(entries), ephemeral=True)

    @tree.command(name="give", description="Owner: grant gold to a user.")
    @app_commands.describe(target="User to receive the gold.", amount="How much gold to grant.")
    async def give(
        interaction: Interaction,
        target: User,
        amount: app_commands.Range[int, 1, MAX_AMOUNT],
    ) -> None:
        authorized = is_owner(interaction.user.id, OWNER_IDS)
        if not authorized:
            await _send(interaction, UNAUTHORIZED_MESSAGE, ephemeral=True)
            return
        try:
            result = await asyncio.to_thread(
                lambda: ledger.credit_admin(str(target.id), int(amount), authorized=authorized)
            )
        except PersistenceFailure:
            await _send(interaction, FAILURE_MESSAGE, ephemeral=True)
            return
        await _send(interaction, give_message(result, target.mention), ephemeral=True)
