"""
Maintenance jobs run against the destinations table.

Every destructive job writes its plan to a backup file first and does
nothing unless confirmation is given explicitly.
"""

__all__ = ["remove_duplicates", "assign_local_images", "delete_destination", "scan_descriptions"]
