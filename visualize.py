# visualize.py
import os
import numpy as np
import matplotlib.pyplot as plt


def _ensure_dir(outpath):
    parent = os.path.dirname(outpath)
    if parent:
        os.makedirs(parent, exist_ok=True)


def plot_cumulative_cycles(cycle_costs, outpath):
    _ensure_dir(outpath)
    total = np.cumsum(cycle_costs) if len(cycle_costs) else np.zeros(0)
    plt.figure(figsize=(8,4))
    plt.plot(total, linewidth=0.8)
    plt.title(f"Cumulative Clock Cycles (Total: {int(total[-1]) if len(total) else 0})")
    plt.xlabel("Access Index")
    plt.ylabel("Cycles")
    plt.grid(True)
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()


def plot_miss_ratio_over_time(hit_flags, outpath):
    _ensure_dir(outpath)
    misses = np.cumsum(~np.asarray(hit_flags, dtype=bool))
    ratio = misses / np.arange(1, len(misses) + 1)
    plt.figure(figsize=(8,4))
    plt.plot(ratio, linewidth=0.8)
    plt.ylim(0, 1)
    plt.title("Running Miss Ratio")
    plt.xlabel("Access Index")
    plt.ylabel("Miss Ratio")
    plt.grid(True)
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()


def plot_hit_miss_rate(hit_rate, outpath):
    _ensure_dir(outpath)
    plt.figure(figsize=(4,4))
    labels = ['Hit', 'Miss']
    sizes = [hit_rate, 1.0 - hit_rate]
    plt.pie(sizes, labels=labels, autopct='%1.1f%%')
    plt.title("Cache Hit/Miss Rate")
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()
