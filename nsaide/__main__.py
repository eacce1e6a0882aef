"""Allow ``python -m nsaide`` execution."""

from nsaide.main import main

main()
