from enum import StrEnum


class ActorRole(StrEnum):
    CUSTOMER = "customer"
    PRO = "pro"
    SYSTEM = "system"
