"""
Engine components: token codec, helper registry, invocation record store,
wrapping engine and resolution engine.
"""
