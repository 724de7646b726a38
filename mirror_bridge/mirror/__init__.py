"""
Mirror — Clone a GitHub repository in mirror mode and push every ref to
its Cloud Source Repository.
"""
