"""Starter .ohmybug.toml template."""

DEFAULT_TOML = """\
# OhMyBug Configuration
version = "1.0"

[scan]
project_type = "auto"     # auto | swift | javascript | flutter | python | mixed
build_check = true        # build the project before scanning and after fixing

[fix]
auto_apply = false        # apply fixes right after the scan
ai_max_issues = 20        # issues sent to the AI fixer per run

[ai]
# api_key = ""            # prefer the OHMYBUG_AI_API_KEY environment variable
# endpoint = "https://open.bigmodel.cn/api/paas/v4/chat/completions"
# model = "codegeex-4"
# timeout = 60.0

[output]
format = "terminal"       # terminal | text | markdown | json | sarif | html
# fail_on = "high"        # exit 1 if issues at or above this level remain
"""
