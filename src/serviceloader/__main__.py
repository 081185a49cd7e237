from serviceloader.cli import main


main()
