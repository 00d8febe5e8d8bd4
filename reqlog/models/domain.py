from __future__ import annotations

import random
import uuid

from pydantic import BaseModel, ConfigDict, Field

from reqlog.observability.records import LogValue, group


class Customer(BaseModel):
    user_id: str
    name: str
    email_id: str
    gst_number: str

    def log_value(self) -> LogValue:
        # Only the id; name, email and GST number are personal data.
        return group(user_id=self.user_id)


class Bank(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    branch_id: int
    branch_name: str
    branch_secret: str = Field(alias="branch-secret")
    customers: list[Customer] = Field(default_factory=list)

    def log_value(self) -> LogValue:
        return self.branch_id


_FIRST_NAMES = ("Asha", "Ravi", "Maria", "Chen", "Olu", "Sam")
_LAST_NAMES = ("Patel", "Garcia", "Okafor", "Li", "Novak", "Singh")
_BRANCHES = ("Central", "Harbour", "Northgate", "Riverside")


def fake_customer(rng: random.Random | None = None) -> Customer:
    rng = rng or random.Random()
    first, last = rng.choice(_FIRST_NAMES), rng.choice(_LAST_NAMES)
    return Customer(
        user_id=str(uuid.uuid4()),
        name=f"{first} {last}",
        email_id=f"{first.lower()}.{last.lower()}@example.com",
        gst_number=f"{rng.randint(10, 37)}ABCDE{rng.randint(1000, 9999)}F1Z{rng.randint(0, 9)}",
    )


def fake_bank(rng: random.Random | None = None, customers: int = 2) -> Bank:
    rng = rng or random.Random()
    return Bank(
        branch_id=rng.randint(1, 99999),
        branch_name=f"{rng.choice(_BRANCHES)} Branch",
        branch_secret=uuid.uuid4().hex,
        customers=[fake_customer(rng) for _ in range(customers)],
    )
