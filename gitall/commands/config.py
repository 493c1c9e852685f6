import click
from gitall.config import load_config, save_config, get_default_config, get_config_path, get_log_path
import json

@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass

@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSONL")
@click.option("--path", is_flag=True, help="Show the config and log file paths being used")
def show_config(pretty, path):
    """Show the current configuration with all merges applied.

    By default, outputs single-line JSON (JSONL format).
    Use --pretty for human-readable formatted output.
    Use --path to see which config and log files are being used.
    """
    config = load_config()

    if path:
        print(json.dumps({
            "config_path": str(get_config_path()),
            "log_path": str(get_log_path(config)),
        }))
        return

    # The token is a secret; never echo it
    if config.get("github", {}).get("token"):
        config["github"]["token"] = "***"

    if pretty:
        print(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        print(json.dumps(config, ensure_ascii=False))

@config_cmd.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
def init_config(force):
    """Write the default configuration to ~/.gitall/config.json."""
    config_path = get_config_path()
    if config_path.exists() and not force:
        click.echo(f"Configuration already exists at {config_path} (use --force to overwrite)")
        return
    written = save_config(get_default_config(), config_path)
    click.echo(f"Default configuration written to {written}")
