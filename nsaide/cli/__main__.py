"""Allow ``python -m nsaide.cli`` execution."""

from nsaide.cli.manage import main

main()
