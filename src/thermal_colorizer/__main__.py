from thermal_colorizer.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
