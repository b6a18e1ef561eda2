"""Built-in CLI sub-commands for restdecl.

* :mod:`~restdecl.commands.contributors` -- list a GitHub repository's
  contributors through the declarative client.
* :mod:`~restdecl.commands.config` -- view and modify global settings.
"""
