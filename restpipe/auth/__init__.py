"""
Built-in token authentication: token codec, login models and the default
authenticate stage.
"""
