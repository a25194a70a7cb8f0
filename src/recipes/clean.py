from recipe_runner import task


@task(name="clean")
def clean():
    """Remove build and distribution output."""
    return [
        "rm -rf ./{dist_dir}",
        "rm -rf ./{target_dir}",
    ]
