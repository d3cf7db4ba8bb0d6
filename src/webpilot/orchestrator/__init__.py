"""Agent loop, prompts and planning."""
