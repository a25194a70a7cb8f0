from recipe_runner import dep, task


@task(
    name="checksum",
    deps=[dep("sign-binary", ONE_PASSWORD_ACCOUNT="{ONE_PASSWORD_ACCOUNT}")],
    params=["ONE_PASSWORD_ACCOUNT"],
)
def checksum():
    """Write the SHA-256 manifest for the signed binary."""
    return [
        "shasum -a 256 {dist_dir}/{binary_name} > {dist_dir}/SHA256SUMS",
    ]
