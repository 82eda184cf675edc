# main.py
import argparse
import json
import sys
from benchmark import TraceRunner, generate_trace
from printer import TeePrinter
from tracefile import TraceError, read_trace
from visualize import plot_cumulative_cycles, plot_hit_miss_rate, plot_miss_ratio_over_time

def load_config(path="config.json"):
    with open(path, "r") as f:
        return json.load(f)

def load_events(cfg):
    trace_path = cfg.get("trace", {}).get("path")
    if trace_path:
        return read_trace(trace_path)
    bench = cfg.get("benchmark", {})
    return generate_trace(
        num_requests=bench.get("num_requests", 10000),
        working_set_kb=bench.get("working_set_kb", 256),
        line_size=cfg.get("cache", {}).get("line_size_bytes", 32),
        read_ratio=bench.get("read_ratio", 0.8),
        access_pattern=bench.get("access_pattern", "mixed"),
        random_seed=bench.get("random_seed", None),
    )

def main(argv=None):
    ap = argparse.ArgumentParser(description="Trace-driven L1 data cache simulator")
    ap.add_argument("--config", default="config.json", help="JSON configuration file")
    ap.add_argument("--trace", default=None, help="Trace file (overrides trace.path)")
    ap.add_argument("--no-plots", action="store_true", help="Skip writing plots")
    args = ap.parse_args(argv)

    try:
        cfg = load_config(args.config)
        if args.trace:
            cfg.setdefault("trace", {})["path"] = args.trace
        events = load_events(cfg)
    except (FileNotFoundError, TraceError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    out_cfg = cfg.get("output", {})
    with TeePrinter(out_cfg.get("log_file", "results/Output.txt")) as printer:
        runner = TraceRunner(cfg, printer=printer)
        summary = runner.run(events)
    results_path = runner.save_results(summary, out_cfg)
    print("Results saved to:", results_path)

    if not args.no_plots and runner.cycle_costs:
        plot_cumulative_cycles(runner.cycle_costs, out_cfg.get("cycles_plot", "results/cumulative_cycles.png"))
        plot_miss_ratio_over_time(runner.hit_flags, out_cfg.get("miss_ratio_plot", "results/miss_ratio.png"))
        plot_hit_miss_rate(summary["hit_rate"], out_cfg.get("hitmiss_plot", "results/hit_miss_rate.png"))
        print("Plots saved in", out_cfg.get("results_dir", "results"))
    return 0

if __name__ == "__main__":
    sys.exit(main())
