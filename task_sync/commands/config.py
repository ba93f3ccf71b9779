"""Config command - show the resolved configuration or write it out."""

from typing import Optional
import json

from ..core.config import SyncConfig, save_config, get_default_config_path


class ConfigCommand:
    """Print the effective configuration (file plus environment overrides)."""

    def __init__(self, config: SyncConfig, verbose: bool = False):
        self.config = config
        self.verbose = verbose

    def run(self, write: bool = False, config_path: Optional[str] = None) -> bool:
        print(json.dumps(self.config.to_dict(), indent=2, ensure_ascii=False))

        policies = self.config.describe_policies()
        print(f"\nPrimary side: {policies['primary_side']}")
        print(f"Symmetric: {'yes' if self.config.is_symmetric else 'no'}")

        if write:
            path = save_config(self.config, config_path)
            print(f"\n✓ Configuration written to {path}")
        elif self.verbose:
            print(f"\nConfig path: {config_path or get_default_config_path()}")
        return True
