from fusepack.app import main

main()
