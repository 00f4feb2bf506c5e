from .upgrades_config import UpgradesConfig
