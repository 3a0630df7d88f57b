"""Main function for pose_state_classifier."""

from pose_state_classifier.core import cli


def run_main() -> None:
    """Main entry point to pose_state_classifier."""
    cli.main()


if __name__ == "__main__":
    run_main()
