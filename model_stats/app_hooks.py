from typing import Protocol


class AppHooks(Protocol):
    """
    Protocol for application hooks to follow long-running evaluations.
    This can be implemented by the main application to show progress
    and to stop statistics evaluation early.

    Methods:
        report_step(info, target, reset_counter, plus_step) -> None:
            Report progress of statistics evaluation.
        stop_requested() -> bool:
            Whether the application wants evaluation to stop.
    """
    def report_step(self, info: str = "", target: int = None, reset_counter: bool = False, plus_step: int = 1) -> None:
        """
        Report progress messages from statistics evaluation.

        Args:
            info (str): Progress message.
            target (int): Total number of steps expected.
            reset_counter (bool): Whether to reset the step counter.
            plus_step (int): Number of steps completed since the last report.
        """
        pass

    def stop_requested(self) -> bool:
        """
        Check if a stop has been requested by the user.

        Returns:
            bool: True if stop is requested, False otherwise.
        """
        return False
