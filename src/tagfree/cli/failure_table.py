"""Failure table shown after a conversion run."""

from pathlib import Path

# Constants for table formatting
MAX_FILENAME_LENGTH = 37
FILENAME_TRUNCATE_LENGTH = 34
MAX_ERROR_MSG_LENGTH = 32
ERROR_MSG_TRUNCATE_LENGTH = 29


def print_failure_table(failed_outputs: list) -> None:
    """
    Print a simple table showing conversion failures.

    Args:
        failed_outputs: OutputRecord objects with ``failed`` status

    """
    if not failed_outputs:
        return

    print("\n" + "=" * 80)
    print(f"{'CONVERSION FAILURES':^80}")
    print("=" * 80)
    print(f"Total failed: {len(failed_outputs)} outputs\n")

    print(f"{'OUTPUT':<40} | {'ERROR':<35}")
    print("-" * 80)

    for output in failed_outputs:
        filename = Path(output.path).name if output.path else output.format
        if len(filename) > MAX_FILENAME_LENGTH:
            filename = filename[:FILENAME_TRUNCATE_LENGTH] + "..."

        # First line only, ffmpeg errors tend to be long
        error_msg = output.reason.splitlines()[0] if output.reason else "Unknown error"
        if len(error_msg) > MAX_ERROR_MSG_LENGTH:
            error_msg = error_msg[:ERROR_MSG_TRUNCATE_LENGTH] + "..."

        print(f"{filename:<40} | {error_msg:<35}")

    print("\n💡 TIP: Check FFmpeg codecs, file permissions, or the manifest for full error text\n")
