"""Run the interactive viewer with `python -m mapinteract`."""
from .main import main

main()
