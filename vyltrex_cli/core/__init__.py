"""
Core application engine for orchestrating installs.

The `InstallManager` sequences the pipeline steps (fetch, verify, extract,
locate) into a single install operation and owns uninstall and launch.
"""
