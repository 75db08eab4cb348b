"""CloudWatch CPU and network summaries for a single Auto Scaling group."""
