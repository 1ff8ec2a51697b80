"""
sorald-bot
Repairs SonarQube rule violations on a target commit with Sorald and
prepares one pull request per rule.
"""

__version__ = "0.1.0"
