from recipe_runner import task


@task(name="build", deps=["clean"])
def build():
    """Cross-compile the universal macOS binary."""
    return [
        "cargo +{toolchain} bin cargo-zigbuild --release --target {target}",
    ]
