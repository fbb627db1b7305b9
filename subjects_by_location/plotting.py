"""
Charts and tables for strategy comparisons.
"""

import logging
from typing import Dict, List

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt
import numpy as np

logger = logging.getLogger(__name__)


def summarize_timings(timings_ms: Dict[str, List[int]]) -> Dict[str, dict]:
    """
    Aggregate repeated runs per strategy.
    Returns dict: strategy -> {avg_ms, std_ms, min_ms, max_ms, num_runs}
    """
    summary = {}
    for name, runs in timings_ms.items():
        if not runs:
            continue
        summary[name] = {
            'avg_ms': float(np.mean(runs)),
            'std_ms': float(np.std(runs)),
            'min_ms': float(np.min(runs)),
            'max_ms': float(np.max(runs)),
            'num_runs': len(runs),
        }
    return summary


def plot_comparison(timings_ms: Dict[str, List[int]], output_file: str, records_sampled: int = 0):
    """Bar chart of mean aggregation time per strategy, with std error bars."""
    summary = summarize_timings(timings_ms)
    if not summary:
        logger.warning("No timings to plot")
        return

    names = list(summary)
    means = [summary[n]['avg_ms'] for n in names]
    stds = [summary[n]['std_ms'] for n in names]

    plt.figure(figsize=(8, 6))
    plt.bar(names, means, yerr=stds, capsize=8, color=['steelblue', 'orangered'][:len(names)])
    plt.xlabel('Strategy', fontsize=12)
    plt.ylabel('Aggregation time (ms)', fontsize=12)
    title = 'Subjects by location: aggregation strategies'
    if records_sampled:
        title += f'\n({records_sampled} sampled records)'
    plt.title(title, fontsize=14, fontweight='bold')
    plt.grid(True, axis='y', alpha=0.3)
    plt.tight_layout()
    plt.savefig(output_file, dpi=150, bbox_inches='tight')
    plt.close()
    logger.info(f"Saved comparison chart to {output_file}")


def write_summary_table(timings_ms: Dict[str, List[int]], output_file: str):
    """Write a markdown table summarizing the timings."""
    summary = summarize_timings(timings_ms)
    lines = [
        "| Strategy | Runs | Avg (ms) | Std Dev | Min (ms) | Max (ms) |",
        "|----------|------|----------|---------|----------|----------|",
    ]
    for name in sorted(summary):
        v = summary[name]
        lines.append(
            f"| {name:<8} | {v['num_runs']:>4} | {v['avg_ms']:>8.1f} | "
            f"{v['std_ms']:>7.2f} | {v['min_ms']:>8.1f} | {v['max_ms']:>8.1f} |"
        )

    with open(output_file, 'w') as f:
        f.write('\n'.join(lines) + '\n')
    logger.info(f"Saved summary table to {output_file}")
