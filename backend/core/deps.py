from fastapi import Request

from services.branch_inventory import BranchInventoryQuery
from services.ledger import InventoryLedger
from services.reasons import ReasonRegistry


def get_inventory_ledger(request: Request) -> InventoryLedger:
    return request.app.state.inventory_ledger


def get_reason_registry(request: Request) -> ReasonRegistry:
    return request.app.state.reason_registry


def get_branch_inventory(request: Request) -> BranchInventoryQuery:
    return request.app.state.branch_inventory
