"""Inventory module - deduplication and emission of discovered clients."""
from .emitter import render_csv, to_discovered_clients, write_inventory_csv, write_inventory_json
from .reconciler import IdentityReconciler, Inventory, reconcile
from .schemas import DiscoveredClient

__all__ = [
    "IdentityReconciler",
    "Inventory",
    "reconcile",
    "DiscoveredClient",
    "render_csv",
    "to_discovered_clients",
    "write_inventory_csv",
    "write_inventory_json",
]
