"""
Command-line shell: Typer commands, Rich progress display and formatters.
"""
