from recipe_runner import Param, task


@task(
    name="sign-binary",
    deps=["build"],
    params=[Param("ONE_PASSWORD_ACCOUNT", export=True)],
)
def sign_binary():
    """Sign the built binary into the dist directory.

    The signing tool reads the account from $ONE_PASSWORD_ACCOUNT.
    """
    return [
        "mkdir -p {dist_dir}",
        "./bin/sign-binary {target_dir}/{target}/release/{binary_name} {dist_dir}/{binary_name}",
    ]
