"""
Engine errors.

Out-of-range states, actions and mask lengths raise the builtin IndexError;
the two classes below cover what IndexError cannot express.
"""


class InvalidConfiguration(ValueError):
    """Raised when a table or config is built with unusable dimensions or weights"""


class OwnershipError(RuntimeError):
    """
    Raised on resource misuse:
    - destroying a table while trajectories still reference it
    - using a destroyed table or trajectory
    - learning from a trajectory recorded against a different table
    """
