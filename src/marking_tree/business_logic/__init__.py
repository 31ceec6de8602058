"""Engine orchestration: request context, group resolution, node building."""
