import asyncio
import logging
import sqlite3
import sys

import discord

from goldbot.commands import setup_commands
from goldbot.config import OWNER_IDS, read_token
from goldbot.config.runtime import ensure_app_config_defaults, get_app_config
from goldbot.core.errors import PersistenceFailure
from goldbot.db import init_db
from goldbot.services.commands import handle_message
from goldbot.services.ledger import LedgerService

logger = logging.getLogger(__name__)


class GoldBot(discord.Client):
    def __init__(self, ledger: LedgerService) -> None:
        intents = discord.Intents.default()
        intents.message_content = True
        super().__init__(intents=intents)
        self.tree = discord.app_commands.CommandTree(self)
        self.ledger = ledger
        self._synced = False

    async def setup_hook(self) -> None:
        setup_commands(self.tree, self.ledger)

    async def on_ready(self) -> None:
        if self._synced:
            return

        # Per-guild sync makes new commands show up without the global delay.
        for guild in self.guilds:
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)

        self._synced = True
        logger.info("Logged in as %s; commands synced to %d guild(s)", self.user, len(self.guilds))

    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot or not message.content:
            return
        try:
            prefix = str(await asyncio.to_thread(get_app_config, "COMMAND_PREFIX"))
            page_size = int(await asyncio.to_thread(get_app_config, "HISTORY_PAGE_SIZE"))
        except sqlite3.Error:
            logger.exception("Could not read chat command config")
            return
        if not message.content.lstrip().startswith(prefix):
            return
        reply = await asyncio.to_thread(
            lambda: handle_message(
                self.ledger,
                message.content,
                str(message.author.id),
                owner_ids=OWNER_IDS,
                prefix=prefix,
                history_page_size=page_size,
            )
        )
        if reply:
            await message.reply(reply, mention_author=False)


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    token = read_token()
    if not token:
        logger.error("No bot token: set GOLDBOT_TOKEN or create a TOKEN file")
        sys.exit(1)
    try:
        init_db()
        ensure_app_config_defaults()
    except sqlite3.Error as exc:
        raise PersistenceFailure(f"could not initialise the database: {exc}") from exc
    if not OWNER_IDS:
        logger.warning("No owners configured; give is disabled")
    bot = GoldBot(LedgerService.from_app_config())
    bot.run(token, log_handler=None)


if __name__ == "__main__":
    main()
