from marking_tree.permissions.access import ACCESS_ALL_GROUPS, AccessProvider

__all__ = ["ACCESS_ALL_GROUPS", "AccessProvider"]
