"""Release recipe: clean, cross-compile, sign, checksum.

Each module declares one task with @task(). Variables below are visible to
every task and can be overridden from the config file or the command line.
"""

VARIABLES = {
    "binary_name": "nix-installer",
    "toolchain": "nightly-2024-03-12",
    "target": "universal2-apple-darwin",
    "dist_dir": "dist",
    "target_dir": "target",
}
