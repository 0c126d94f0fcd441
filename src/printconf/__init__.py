"""Print-shop product configuration evaluation and component reconciliation."""
