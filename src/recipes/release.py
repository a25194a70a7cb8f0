from recipe_runner import dep, task


@task(
    name="release",
    deps=[dep("checksum", ONE_PASSWORD_ACCOUNT="{ONE_PASSWORD_ACCOUNT}")],
    params=["ONE_PASSWORD_ACCOUNT"],
)
def release():
    """Build, sign and checksum, then print the manifest."""
    return ["cat {dist_dir}/SHA256SUMS"]
