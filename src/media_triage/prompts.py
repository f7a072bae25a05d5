import logging
from typing import Optional, Sequence

from .errors import PromptError

try:
    import readline
except ImportError:
    # Not shipped on Windows; prompts then show the default instead of pre-filling it.
    readline = None

logger = logging.getLogger(__name__)

CHOICE_PROMPT = "Enter choice number: "


def _read_line(label: str) -> Optional[str]:
    try:
        return input(label)
    except KeyboardInterrupt:
        logger.warning("\nInterrupted. No input taken.")
        return None
    except EOFError:
        logger.warning("\nInput stream closed (EOF). No input taken.")
        return None
    except OSError as e:
        raise PromptError(f"Could not read from the terminal: {e}") from e


def prompt_with_default(label: str, default: str) -> Optional[str]:
    """
    Asks for a line of text with `default` already typed in and editable.

    Without readline the default is shown in brackets instead, and an
    empty answer keeps it.

    Returns:
        The submitted line, or None if the user interrupted or closed the
        input stream.

    Raises:
        PromptError: If the terminal cannot be read.
    """
    if readline is None:
        answer = _read_line(f"{label}[{default}] (Enter to keep): ")
        if answer is None:
            return None
        return answer.strip() or default

    readline.set_startup_hook(lambda: readline.insert_text(default))
    try:
        return _read_line(label)
    finally:
        readline.set_startup_hook()


def choose_option(options: Sequence[str]) -> int:
    """
    Prints a numbered menu and reads the user's choice.

    Returns:
        The 1-based index of the chosen option, or 0 when the answer is
        '0', not a number, out of range, interrupted or EOF.

    Raises:
        PromptError: If the terminal cannot be read.
    """
    for number, option in enumerate(options, start=1):
        print(f"{number}: {option}")

    try:
        answer = input(CHOICE_PROMPT)
    except KeyboardInterrupt:
        logger.warning("\nInterrupted (CTRL-C).")
        return 0
    except EOFError:
        logger.warning("\nInput stream closed (CTRL-D).")
        return 0
    except OSError as e:
        raise PromptError(f"Could not read from the terminal: {e}") from e

    try:
        choice = int(answer.strip())
    except ValueError:
        return 0
    if choice < 1 or choice > len(options):
        return 0
    return choice
