"""Starter .flashaudit.toml template."""

DEFAULT_TOML = """\
# flashaudit configuration
version = "1.0"
chain = "ethereum"
analysis_mode = "comprehensive"   # comprehensive | security | gas | quality

[engine]
max_source_chars = 1000000
semantic_timeout_sec = 60.0
fail_on = "high"          # low | medium | high | critical

[semantic]
enabled = true
base_url = "https://openrouter.ai/api/v1"
model = "google/gemma-2-9b-it:free"
api_key_env = "OPENROUTER_API_KEY"
# temperature = 0.1
# max_tokens = 4000

[rules]
# enable = ["TX_ORIGIN_AUTH", "DELEGATECALL"]   # empty = all enabled
# disable = ["STORAGE_WRITE"]
# custom_dir = ".flashaudit-rules"

[output]
format = "terminal"       # terminal | json | sarif
show_summary = true

[storage]
enabled = false
path = ".flashaudit/history.jsonl"
"""
