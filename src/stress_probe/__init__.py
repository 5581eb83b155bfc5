"""StressProbe: on-demand CPU saturation and per-core utilization reporting."""
