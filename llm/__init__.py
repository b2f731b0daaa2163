"""
Language-model collaborators (comprehension quiz generation)
"""
