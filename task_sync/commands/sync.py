"""Sync command - run a single reconciliation pass and print a summary."""

from typing import Optional
import dataclasses
import logging

from ..core.config import SyncConfig
from ..core.exceptions import SyncError
from ..core.models import PassResult, PassState, Side
from ..stores import build_store
from ..sync.runner import SyncRunner


def build_runner(config: SyncConfig, logger: Optional[logging.Logger] = None) -> SyncRunner:
    """Construct both stores and a runner from configuration."""
    store_a = build_store(config.side_a, logger=logger)
    store_b = build_store(config.side_b, logger=logger)
    return SyncRunner(store_a, store_b, config, logger=logger)


class SyncCommand:
    """Command for running one sync pass between Side A and Side B."""

    def __init__(self, config: SyncConfig, verbose: bool = False):
        self.config = config
        self.verbose = verbose
        self.logger = logging.getLogger(__name__)
        if verbose:
            self.logger.setLevel(logging.DEBUG)

    def run(self, side_a_path: Optional[str] = None, side_b_path: Optional[str] = None) -> bool:
        """Run the sync command."""
        self._override_path(Side.A, side_a_path)
        self._override_path(Side.B, side_b_path)

        runner = build_runner(self.config)
        policies = self.config.describe_policies()
        print(f"\n🔄 Syncing {self.config.side_a.name} ↔ {self.config.side_b.name}")
        print(
            f"   completion={policies['completion']}, notes={policies['notes']}, "
            f"create={policies['create_direction']}"
        )

        try:
            result = runner.run_once()
        except SyncError as exc:
            print(f"\n❌ Sync failed: {exc}")
            if exc.result is not None:
                self._print_summary(exc.result)
            return False

        self._print_summary(result)
        return result.success

    def _override_path(self, side: Side, path: Optional[str]) -> None:
        if not path:
            return
        settings = dataclasses.replace(self.config.store_config(side), type="json", path=path)
        if side is Side.A:
            self.config.side_a = settings
        else:
            self.config.side_b = settings

    def _print_summary(self, result: PassResult) -> None:
        if result.state is PassState.SKIPPED:
            print("\n⏭️  Sync already in progress, nothing done")
            return

        print("\n📊 Summary:")
        print(f"   Created: {result.created}")
        print(f"   Updated: {result.updated}")
        print(f"   Skipped: {result.skipped}")
        print(f"   Errors:  {result.errors}")
        if result.duration_ms is not None:
            print(f"   Took {result.duration_ms} ms")

        if self.verbose and result.operations:
            print("\n   Operations:")
            for op in result.operations:
                line = f"     • [{op.status}] {op.kind} on {op.target.value}: {op.title}"
                if op.detail:
                    line += f" ({op.detail})"
                print(line)
