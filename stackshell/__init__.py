# ABOUTME: stackshell package root
# ABOUTME: Interactive shell for cloud management server APIs

"""stackshell - interactive shell for cloud management server APIs."""

__version__ = "1.0.0"
