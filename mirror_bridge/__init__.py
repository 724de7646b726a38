"""
Mirror Bridge — Mirror GitHub repositories into Cloud Source Repositories.

A push webhook triggers a full mirror clone of the GitHub repository and a
mirror push into the matching Cloud Source Repository.
"""

__version__ = "0.1.0"
