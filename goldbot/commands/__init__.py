from discord import app_commands

from goldbot.commands.economy import setup_economy
from goldbot.commands.gamble import setup_gamble
from goldbot.services.ledger import LedgerService


def setup_commands(tree: app_commands.CommandTree, ledger: LedgerService) -> None:
    setup_economy(tree, ledger)
    setup_gamble(tree, ledger)
