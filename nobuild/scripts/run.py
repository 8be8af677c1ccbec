def run():
    from nobuild.scripts.cli import cli_with_error_catching
    cli_with_error_catching()


if __name__ == "__main__":
    run()
