from bootstrapcore.cli import main

main()
