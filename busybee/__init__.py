"""BusyBee: daily-allowance budgeting with rollover, streaks and savings goals."""

__version__ = "0.4.0"
