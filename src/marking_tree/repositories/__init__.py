from marking_tree.repositories.settings_repo import SettingsRepository

__all__ = ["SettingsRepository"]
