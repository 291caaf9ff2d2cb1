"""sheaf - pattern-filtered batch file operations.

Combine files, directory subtrees and other folders into one virtual
folder, then copy, move, delete, pack or list them in one call.
"""

from sheaf.core.folder import Folder
from sheaf.core.locations import Directory, File, locate
from sheaf.core.options import FilterSet, compose

__version__ = "0.1.0"

__all__ = [
    "Directory",
    "File",
    "FilterSet",
    "Folder",
    "__version__",
    "compose",
    "locate",
]
