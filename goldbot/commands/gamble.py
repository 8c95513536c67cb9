from __future__ import annotations

import asyncio

import discord
from discord import ButtonStyle, Interaction, app_commands

from goldbot.config.settings import MAX_AMOUNT
from goldbot.core.errors import PersistenceFailure
from goldbot.services.ledger import LedgerService, WagerResult
from goldbot.services.messages import FAILURE_MESSAGE, wager_message


async def _run_wager(
    ledger: LedgerService,
    interaction: Interaction,
    *,
    game: str,
    bet: int,
    pick: str | None = None,
) -> tuple[bool, str]:
    try:
        result: WagerResult = await asyncio.to_thread(
            ledger.place_wager,
            str(interaction.user.id),
            game,
            int(bet),
            pick,
        )
    except PersistenceFailure:
        return False, FAILURE_MESSAGE
    return result.accepted, wager_message(result)


class PlayAgainView(discord.ui.View):
    def __init__(self, ledger: LedgerService, owner_id: int, *, game: str, bet: int, pick: str | None) -> None:
        super().__init__(timeout=300)
        self._ledger = ledger
        self._owner_id = owner_id
        self._game = game
        self._bet = int(bet)
        self._pick = pick

    @discord.ui.button(label="Play Again", style=ButtonStyle.primary)
    async def play_again(self, interaction: Interaction, _button: discord.ui.Button) -> None:
        if interaction.user.id != self._owner_id:
            await interaction.response.send_message("Only the command user can use this button.", ephemeral=True)
            return
        ok, message = await _run_wager(
            self._ledger,
            interaction,
            game=self._game,
            bet=self._bet,
            pick=self._pick,
        )
        if not ok:
            await interaction.response.send_message(message, ephemeral=True)
            return
        next_view = PlayAgainView(
            self._ledger,
            self._owner_id,
            game=self._game,
            bet=self._bet,
            pick=self._pick,
        )
        await interaction.response.send_message(message, view=next_view)


async def _play(
    ledger: LedgerService,
    interaction: Interaction,
    *,
    game: str,
    bet: int,
    pick: str | None = None,
) -> None:
    ok, message = await _run_wager(ledger, interaction, game=game, bet=bet, pick=pick)
    if not ok:
        await interaction.response.send_message(message, ephemeral=True)
        return
    view = PlayAgainView(ledger, interaction.user.id, game=game, bet=bet, pick=pick)
    await interaction.response.send_message(message, view=view)


def setup_gamble(tree: app_commands.CommandTree, ledger: LedgerService) -> None:
    @tree.command(name="spin", description="Spin the wheel: x2, x5 or x10 your bet.")
    @app_commands.describe(bet="Gold to stake.")
    async def spin(interaction: Interaction, bet: app_commands.Range[int, 1, MAX_AMOUNT]) -> None:
        await _play(ledger, interaction, game="spin", bet=bet)

    @tree.command(name="slots", description="Pull the slot machine.")
    @app_commands.describe(bet="Gold to stake.")
    async def slots(interaction: Interaction, bet: app_commands.Range[int, 1, MAX_AMOUNT]) -> None:
        await _play(ledger, interaction, game="slots", bet=bet)

    @tree.command(name="roulette", description="Bet on a color (red/black/green) or a number 0-36.")
    @app_commands.describe(bet="Gold to stake.", pick="red, black, green or a number from 0 to 36.")
    async def roulette(interaction: Interaction, bet: app_commands.Range[int, 1, MAX_AMOUNT], pick: str) -> None:
        await _play(ledger, interaction, game="roulette", bet=bet, pick=pick)

    @roulette.autocomplete("pick")
    async def roulette_pick_autocomplete(
        interaction: Interaction,
        current: str,
    ) -> list[app_commands.Choice[str]]:
        options = ["red", "black", "green"] + [str(n) for n in range(37)]
        query = current.strip().lower()
        if query:
            options = [opt for opt in options if opt.startswith(query)]
        return [app_commands.Choice(name=opt, value=opt) for opt in options[:25]]

    @tree.command(name="casino", description="Take on the house.")
    @app_commands.describe(bet="Gold to stake.")
    async def casino(interaction: Interaction, bet: app_commands.Range[int, 1, MAX_AMOUNT]) -> None:
        await _play(ledger, interaction, game="casino", bet=bet)
