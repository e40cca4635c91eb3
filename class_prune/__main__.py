from class_prune.cli import main

main()
