import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from . import config
from .core import SUBTITLE_EXTENSIONS, VIDEO_EXTENSIONS, FilterCategory, FilteredTreeCopier
from .errors import (
    ConfigError,
    ConfigWriteError,
    CopyIOError,
    DirectoryReadError,
    PromptError,
    RenameError,
    TriageError,
)
from .normalizer import clean_filename
from .prompts import choose_option, prompt_with_default

logger = logging.getLogger(__name__)

DESTINATION_PROMPT = "Destination: "

# Menu order matters: choice N selects the Nth category, anything else is ANY.
FILTER_CHOICES = (FilterCategory.VIDEO, FilterCategory.SUBTITLES, FilterCategory.BOTH)


def setup_logging(level: int):
    """Routes log records to stdout, next to the menus printed by the session."""
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def _is_utf8_name(name: str) -> bool:
    # Undecodable bytes come back as surrogate escapes, which cannot be stored in the config.
    try:
        name.encode('utf-8')
    except UnicodeEncodeError:
        return False
    return True


def list_source_folders(source_dir: Path) -> List[str]:
    """
    Returns the names of the immediate subdirectories of `source_dir`,
    sorted ascending.

    Symlinks to directories and names that are not valid UTF-8 are left out.

    Raises:
        DirectoryReadError: If the directory cannot be listed.
    """
    try:
        names = [
            entry.name for entry in source_dir.iterdir()
            if entry.is_dir() and not entry.is_symlink() and _is_utf8_name(entry.name)
        ]
    except OSError as e:
        raise DirectoryReadError(f"Failed to read Source Directory {source_dir}: {e}") from e
    return sorted(names)


def list_folder_contents(folder: Path) -> List[str]:
    """Returns the names of the entries directly inside `folder`."""
    try:
        return [entry.name for entry in folder.iterdir() if _is_utf8_name(entry.name)]
    except OSError as e:
        raise DirectoryReadError(f"Failed to read source {folder}: {e}") from e


def format_menu_entry(name: str, mapping: Dict[str, str]) -> str:
    """
    Renders a source folder for the selection menu.

    Mapped folders are starred, with the destination name in parentheses
    when it differs from the folder name.
    """
    if name not in mapping:
        return name
    destination_name = mapping[name]
    if destination_name != name:
        return f"*{name} ({destination_name})"
    return f"*{name}"


def filter_menu_options() -> List[str]:
    videos = ", ".join(VIDEO_EXTENSIONS)
    subtitles = ", ".join(SUBTITLE_EXTENSIONS)
    return [
        f"Video     - [{videos}]",
        f"Subtitles - [{subtitles}]",
        f"Both      - [{videos}, {subtitles}]",
        "Any       - [*] (DEFAULT)",
    ]


def category_for_choice(choice: int) -> FilterCategory:
    """Maps a filter menu answer to its category; 0 or out of range means ANY."""
    if 1 <= choice <= len(FILTER_CHOICES):
        return FILTER_CHOICES[choice - 1]
    return FilterCategory.ANY


def rename_destination(old_path: Path, new_path: Path) -> None:
    """
    Moves an already-created destination folder to its new name.

    Raises:
        RenameError: If the rename fails (e.g. the old folder does not exist).
    """
    print(f"{old_path} -> {new_path}")
    try:
        old_path.rename(new_path)
    except OSError as e:
        raise RenameError(f"Could not rename '{old_path}' to '{new_path}': {e}") from e
    print("(Move Successful)\n")


def resolve_destination_name(folder_name: str, cfg: config.Config, config_path: Path) -> str:
    """
    Settles the destination name of the selected source folder.

    Unmapped folders get a suggestion from `clean_filename`; whatever the
    user submits is stored. Mapped folders offer the stored name; if the user
    changes it, the existing destination folder is renamed first and the
    mapping is replaced afterwards. The configuration is saved right after
    every mapping change.

    Returns:
        The destination folder name to copy into.

    Raises:
        RenameError: If renaming the existing destination folder fails. The
                     mapping is left untouched in that case.
        ConfigWriteError: If the updated mapping cannot be saved.
    """
    existing_name = cfg.mapping.get(folder_name)

    if existing_name is None:
        suggestion = clean_filename(folder_name)
        destination_name = prompt_with_default(DESTINATION_PROMPT, suggestion) or ""
        print(f"{destination_name}\n")

        cfg.mapping[folder_name] = destination_name
        config.save_config(config_path, cfg)
        logger.info(f"Mapping saved: '{folder_name}' -> '{destination_name}'")
        return destination_name

    destination_name = prompt_with_default(DESTINATION_PROMPT, existing_name) or ""
    if destination_name == existing_name:
        return destination_name

    destination_root = Path(cfg.settings.destination_dir)
    rename_destination(destination_root / existing_name, destination_root / destination_name)

    del cfg.mapping[folder_name]
    cfg.mapping[folder_name] = destination_name
    config.save_config(config_path, cfg)
    logger.info(f"Mapping updated: '{folder_name}' -> '{destination_name}'")
    return destination_name


def _run_steps(cfg: config.Config, config_path: Path) -> int:
    source_root = Path(cfg.settings.source_dir)
    destination_root = Path(cfg.settings.destination_dir)

    source_folders = list_source_folders(source_root)
    if not source_folders:
        logger.info("No Source Files, Quitting...")
        return 0

    selection = choose_option([format_menu_entry(name, cfg.mapping) for name in source_folders])
    if selection == 0:
        logger.info("Bye.")
        return 0

    folder_name = source_folders[selection - 1]
    print(f"{folder_name}\n")

    destination_name = resolve_destination_name(folder_name, cfg, config_path)
    copy_src = source_root / folder_name
    copy_dest = destination_root / destination_name

    print("Contents:")
    for entry in list_folder_contents(copy_src):
        print(f" - {entry}")
    print("\nSelect Extensions to copy:")

    category = category_for_choice(choose_option(filter_menu_options()))
    print(f"{copy_src} -> {copy_dest}")

    try:
        copier = FilteredTreeCopier(copy_src, copy_dest)
    except ValueError as e:
        raise CopyIOError(str(e)) from e
    copier.copy(category)

    logger.info("Copy Success!")
    return 0


def run_session(config_path: Path) -> int:
    """
    Runs one interactive triage session against the given config file.

    Returns:
        The process exit code: 0 on success or cancellation, 1 on any
        configuration, filesystem or terminal failure.
    """
    try:
        cfg = config.load_config(config_path)
    except ConfigError as e:
        logger.critical(f"Error reading config ({config_path}):\n{e}")
        return 1

    try:
        return _run_steps(cfg, config_path)
    except ConfigWriteError as e:
        logger.critical(f"Failed to update config. (No files have been copied): {e}")
    except PromptError as e:
        logger.error(f"Prompt failed: {e}")
    except TriageError as e:
        logger.critical(str(e))
    return 1


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point of the CLI application."""
    parser = argparse.ArgumentParser(
        description="Picks a downloaded media folder, names it, and copies the chosen kind of files into the library."
    )
    parser.add_argument("-c", "--config", type=Path, default=None, help=f"Configuration file to use (default: ./{config.CONFIG_FILE_NAME}).")
    parser.add_argument("-v", "--verbose", action="store_const", dest="loglevel", const=logging.DEBUG, default=logging.INFO, help="Increase output verbosity to DEBUG level.")

    args = parser.parse_args(argv)

    setup_logging(args.loglevel)

    config_path = config.resolve_config_path(args.config)
    try:
        exit_code = run_session(config_path)
    except Exception as e:
        logger.critical(f"An unexpected critical error occurred: {e}", exc_info=True)
        exit_code = 1
    sys.exit(exit_code)
