"""
grepshell Library - Interactive grep/find shell with numbered file lists

Search results are numbered, so later commands can refer to "file 3"
instead of a path. Several file lists can be kept side by side; list 0 is
the one searches fill and most commands use.

Modules:
    filelists  - Numbered file lists and stored search results
    annotate   - Turn grep output into numbered, highlighted results
    search     - grep, find and host shell invocation
    shell      - The interactive command loop
    state      - Save and restore lists between runs
    config     - Session constants and state directory
    arguments  - Delimiter-based argument grouping
    viewer     - hcat, the highlighting pager
    listing    - ls with recency colors
    editor     - Open files in $EDITOR
    colors     - Terminal colors
"""

__version__ = "1.0.0"
__all__ = []
