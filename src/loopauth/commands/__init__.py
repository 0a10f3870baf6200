"""Built-in CLI sub-command groups for loopauth.

* :mod:`~loopauth.commands.providers` -- list, add and remove the provider
  profiles stored in the config directory.

``login`` and ``call`` are single commands registered directly on the root
app in :mod:`loopauth.app`.
"""
