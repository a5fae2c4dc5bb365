"""Timezone comparison: command parsing, location search and day timelines."""
