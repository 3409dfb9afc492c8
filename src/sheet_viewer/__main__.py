from sheet_viewer import cli

if __name__ == "__main__":
    cli.app()
