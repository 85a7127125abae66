from mobiheader.cli import main

main()
