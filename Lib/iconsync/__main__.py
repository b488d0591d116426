from iconsync.scripts.sync import main

if __name__ == "__main__":
    main()
