# Import all models here for Alembic
from yuki.models.document import Document
from yuki.models.account import Account
from yuki.models.category import Category
from yuki.models.currency import Currency
from yuki.models.ledger_entry import LedgerEntry
from yuki.models.receipt import Receipt
from yuki.models.purchased_item import PurchasedItem
from yuki.models.chat_history import ChatHistoryEntry
from yuki.models.conversation import ConversationSession, ConversationMessage
from yuki.models.app_setting import AppSetting

__all__ = [
    "Document",
    "Account",
    "Category",
    "Currency",
    "LedgerEntry",
    "Receipt",
    "PurchasedItem",
    "ChatHistoryEntry",
    "ConversationSession",
    "ConversationMessage",
    "AppSetting",
]
