"""
Pull request text and naming for Sorald patches
"""

TOOL_NAME = "Sorald"
PR_TITLE = "Fix Sorald violations"
RULE_LINK_TEMPLATE = "https://rules.sonarsource.com/java/RSPEC-"
STOP_INSTRUCTION = "If you do no want to receive automated PRs for Sorald warnings, reply to this PR with 'STOP'"
COMMIT_HASH_PREFIX_LENGTH = 10


def build_branch_name(prefix: str, commit_id: str, rule: str) -> str:
    """<prefix>-<first 10 chars of the commit>_<rule>"""
    return f"{prefix}-{commit_id[:COMMIT_HASH_PREFIX_LENGTH]}_{rule}"


def build_commit_message(tool_name: str, rule: str) -> str:
    return f"Proposal for patching the {tool_name} rule {rule}"


def rule_link(rule: str) -> str:
    return f"{RULE_LINK_TEMPLATE}{rule}"


def build_pr_text(rule: str) -> str:
    lines = [
        "This PR fixes the violations for the following Sorald rule: ",
        rule_link(rule),
        STOP_INSTRUCTION,
    ]
    return "\n".join(lines)
