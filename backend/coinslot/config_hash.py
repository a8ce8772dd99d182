"""Config hash of the game math.

Shared by:
- rtp_sim.py (simulation CSV)
- telemetry (spin_settled event)
- GET /paytable

The hash MUST be computed identically in all of them.
"""
import hashlib
import json

from coinslot.logic.engine import MachineConfig, build_machine_config


def get_config_hash(config: MachineConfig | None = None) -> str:
    """
    Generate hash of the machine configuration.

    Returns 16-char hex hash of weights, paytable and spin cost.
    """
    config = config or build_machine_config()
    config_snapshot = {
        "weights": [[w.symbol, w.weight] for w in config.weights],
        "paytable": [[entry.label, entry.payout] for entry in config.paytable],
        "spin_cost": config.spin_cost,
    }
    canonical = json.dumps(config_snapshot, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode()).hexdigest()[:16]
