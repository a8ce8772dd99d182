#!/usr/bin/env python3
"""
RTP simulation for the coin slot machine.

Plays the configured machine headlessly with a seeded RNG and reports
return-to-player, hit frequency and per-symbol draw frequencies next to
their exact theoretical values.

Usage:
    python -m scripts.rtp_sim --rounds 100000 --seed SIM_2025
    python -m scripts.rtp_sim --rounds 100000 --seed SIM_2025 --out out/rtp.csv
"""
import argparse
import csv
import hashlib
import sys
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from itertools import product
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from coinslot.config_hash import get_config_hash
from coinslot.logic.engine import REELS, MachineConfig, SlotMachine, build_machine_config
from coinslot.logic.resolver import PayoutResolver
from coinslot.logic.rng import SeededRNG


@dataclass
class SimulationStats:
    """Statistics accumulated during simulation."""
    rounds: int = 0
    total_wagered: int = 0
    total_won: int = 0
    wins: int = 0
    max_payout: int = 0
    symbol_counts: Counter = field(default_factory=Counter)
    payout_counts: Counter = field(default_factory=Counter)

    @property
    def rtp(self) -> float:
        """Return to player in percent."""
        return (self.total_won / self.total_wagered * 100) if self.total_wagered > 0 else 0.0

    @property
    def hit_freq(self) -> float:
        """Winning spins in percent."""
        return (self.wins / self.rounds * 100) if self.rounds > 0 else 0.0

    def symbol_frequency(self, symbol: int) -> float:
        """Observed share of all drawn symbols."""
        drawn = self.rounds * REELS
        return self.symbol_counts[symbol] / drawn if drawn > 0 else 0.0


def get_timestamp_iso() -> str:
    """Get ISO 8601 UTC timestamp."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def seed_to_int(seed_str: str) -> int:
    """Convert string seed to integer deterministically."""
    return int(hashlib.sha256(seed_str.encode()).hexdigest(), 16) % (2**31)


def theoretical_rtp(config: MachineConfig) -> tuple[float, float]:
    """
    Exact (rtp %, hit frequency %) by enumerating every reel combination.

    N**3 combinations, fine for small alphabets.
    """
    resolver = PayoutResolver(config.paytable)
    total = sum(w.weight for w in config.weights)
    expected_payout = 0.0
    hit_probability = 0.0
    for combo in product(config.weights, repeat=REELS):
        probability = 1.0
        for entry in combo:
            probability *= entry.weight / total
        resolution = resolver.resolve([entry.symbol for entry in combo])
        if resolution.win:
            hit_probability += probability
            expected_payout += probability * resolution.payout
    return expected_payout / config.spin_cost * 100, hit_probability * 100


def run_simulation(
    rounds: int,
    seed_str: str,
    config: MachineConfig | None = None,
    verbose: bool = False,
) -> SimulationStats:
    """
    Run a headless simulation.

    Every round costs spin_cost; balances are not modelled, only totals.
    """
    config = config or build_machine_config()
    machine = SlotMachine(config, rng=SeededRNG(seed_to_int(seed_str)))
    stats = SimulationStats()

    progress_step = max(rounds // 20, 1)
    for round_count in range(rounds):
        if verbose and round_count % progress_step == 0:
            print(f"\rProgress: {round_count / rounds * 100:.1f}%", end="")

        result = machine.play()
        stats.rounds += 1
        stats.total_wagered += config.spin_cost
        stats.total_won += result.payout
        stats.symbol_counts.update(result.reels)
        stats.payout_counts[result.payout] += 1
        if result.win:
            stats.wins += 1
        stats.max_payout = max(stats.max_payout, result.payout)

    if verbose:
        print("\rProgress: 100.0%")

    return stats


def generate_csv(
    rounds: int,
    seed_str: str,
    stats: SimulationStats,
    output_path: str,
    config: MachineConfig | None = None,
) -> None:
    """Write a one-row summary CSV."""
    config = config or build_machine_config()
    rtp_theory, hit_theory = theoretical_rtp(config)

    # Column order: timestamp, config_hash first
    row = {
        "timestamp": get_timestamp_iso(),
        "config_hash": get_config_hash(config),
        "rounds": rounds,
        "seed": seed_str,
        "spin_cost": config.spin_cost,
        "rtp": f"{stats.rtp:.4f}",
        "rtp_theoretical": f"{rtp_theory:.4f}",
        "hit_freq": f"{stats.hit_freq:.4f}",
        "hit_freq_theoretical": f"{hit_theory:.4f}",
        "max_payout": stats.max_payout,
    }
    for entry in config.weights:
        row[f"freq_symbol_{entry.symbol}"] = f"{stats.symbol_frequency(entry.symbol):.6f}"

    # Ensure output directory exists
    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    with open(output_file, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=row.keys())
        writer.writeheader()
        writer.writerow(row)

    print(f"CSV written to: {output_path}")


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="RTP simulation for the coin slot machine")
    parser.add_argument(
        "--rounds",
        type=int,
        required=True,
        help="Number of rounds to simulate",
    )
    parser.add_argument(
        "--seed",
        type=str,
        required=True,
        help="Seed string for reproducibility",
    )
    parser.add_argument(
        "--out",
        type=str,
        default=None,
        help="Optional output CSV path",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show progress",
    )

    args = parser.parse_args()
    if args.rounds <= 0:
        parser.error("--rounds must be positive")

    config = build_machine_config()
    print(f"Running simulation: rounds={args.rounds}, seed={args.seed}")
    print(f"Config hash: {get_config_hash(config)}")

    stats = run_simulation(args.rounds, args.seed, config=config, verbose=args.verbose)

    if args.out:
        generate_csv(args.rounds, args.seed, stats, args.out, config=config)

    rtp_theory, hit_theory = theoretical_rtp(config)
    print(f"\nSummary:")
    print(f"  Rounds: {stats.rounds}")
    print(f"  Total wagered: {stats.total_wagered}")
    print(f"  Total won: {stats.total_won}")
    print(f"  RTP: {stats.rtp:.4f}% (theoretical {rtp_theory:.4f}%)")
    print(f"  Hit frequency: {stats.hit_freq:.4f}% (theoretical {hit_theory:.4f}%)")
    print(f"  Max payout: {stats.max_payout}")
    print(f"\nSymbol frequencies:")
    total = sum(w.weight for w in config.weights)
    for entry in config.weights:
        print(
            f"  {entry.symbol}: {stats.symbol_frequency(entry.symbol):.4f} "
            f"(expected {entry.weight / total:.4f})"
        )
    print(f"\nPayout distribution:")
    for payout, count in sorted(stats.payout_counts.items()):
        print(f"  {payout:>5}: {count} ({count / stats.rounds * 100:.4f}%)")

    return 0


if __name__ == "__main__":
    sys.exit(main())
