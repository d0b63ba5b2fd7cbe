from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class ExpenseCategory(Enum):
    COMIDA = ("comida", "Comida", "🍕")
    RESTAURANTE = ("restaurante", "Restaurante", "🍽️")
    SUPER = ("super", "Super", "🛒")
    TRANSPORTE = ("transporte", "Transporte", "🚗")
    ENTRETENIMIENTO = ("entretenimiento", "Entretenimiento", "🎭")
    SHOPPING = ("shopping", "Shopping", "🛍️")
    UTILIDADES = ("utilidades", "Utilidades", "💡")
    SALUD = ("salud", "Salud", "🏥")
    VIAJES = ("viajes", "Viajes", "✈️")
    EDUCACION = ("educacion", "Educacion", "📚")
    FOOD_DELIVERY = ("food-delivery", "Food delivery", "🛵")
    EVENTO = ("evento", "Evento", "🎉")
    OTROS = ("otros", "Otros", "📌")

    def __init__(self, category_id: str, label: str, icon: str):
        self.category_id = category_id
        self.label = label
        self.icon = icon

    @classmethod
    def from_id(cls, category_id: str) -> "ExpenseCategory":
        for category in cls:
            if category.category_id == category_id:
                return category
        raise ValueError(f"Unknown expense category: {category_id!r}")


@dataclass(frozen=True)
class Participant:
    id: str
    name: str


@dataclass(frozen=True)
class ExpenseItem:
    id: str
    description: str
    amount: float
    payer_id: Optional[str] = None
    # Empty means the item is shared by every participant of the expense
    subgroup: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Expense:
    id: str
    title: str
    category: ExpenseCategory
    date: str
    participants: Tuple[Participant, ...] = ()
    items: Tuple[ExpenseItem, ...] = ()

    @property
    def participant_ids(self) -> List[str]:
        return [p.id for p in self.participants]

    @property
    def total(self) -> float:
        return sum(item.amount for item in self.items)

    def participant_name(self, pid: Optional[str]) -> str:
        for p in self.participants:
            if p.id == pid:
                return p.name
        return str(pid)


@dataclass(frozen=True)
class Balance:
    participant_id: str
    paid: float = 0.0
    owes: float = 0.0

    @property
    def net(self) -> float:
        # Positive: in debt to the group. Negative: the group owes them.
        return self.owes - self.paid


@dataclass(frozen=True)
class DebtEdge:
    debtor_id: str
    creditor_id: str
    amount: float
    item_id: str
    description: str
    item_amount: float


@dataclass(frozen=True)
class SettlementPayment:
    from_id: str
    to_id: str
    amount: float
    debts: Tuple[DebtEdge, ...] = ()


@dataclass(frozen=True)
class ItemShare:
    item_id: str
    description: str
    item_amount: float
    share: float
    included: bool


@dataclass(frozen=True)
class AppSettings:
    theme: str = "light"
    currency: str = "ARS"


@dataclass(frozen=True)
class DateRange:
    start: Optional[str] = None
    end: Optional[str] = None


@dataclass(frozen=True)
class AppState:
    expenses: Tuple[Expense, ...] = ()
    settings: AppSettings = field(default_factory=AppSettings)
    search_query: str = ""
    date_range: DateRange = field(default_factory=DateRange)
    selected_category: Optional[ExpenseCategory] = None
