from upstream_merge import main

if __name__ == "__main__":
    main()
