import os
import subprocess
import sys
from pathlib import Path

def main():
    """Build the application using PyInstaller"""
    project_root = Path(__file__).parent

    # Configuration
    app_name = "FocusTimer"
    entry_point = "main.py"

    # Windows uses ";" as separator, Linux ":"
    sep = ";" if os.name == "nt" else ":"

    # Assets are optional; the tray falls back to a generated icon
    assets = project_root / "focustimer" / "assets"
    icon = assets / "icon.ico"

    args = [
        "PyInstaller",
        "--noconfirm",
        "--clean",
        "--windowed",  # No console window
        f"--name={app_name}",
    ]
    if icon.exists():
        args.append(f"--icon={icon.absolute()}")
    if assets.exists():
        args.append(f"--add-data=focustimer/assets{sep}focustimer/assets")

    args.append("--hidden-import=aiosqlite")

    # Exclude unused database drivers to reduce warnings
    args.append("--exclude-module=MySQLdb")
    args.append("--exclude-module=psycopg2")
    args.append("--exclude-module=pysqlite2")

    args.append(entry_point)

    print("=" * 50)
    print(f"Building {app_name}...")
    print(f"Command: {' '.join(args)}")
    print("=" * 50)

    try:
        subprocess.run([sys.executable, "-m", "PyInstaller", "--version"], check=True, capture_output=True)
        subprocess.run([sys.executable, "-m"] + args, check=True)

        print("\nBuild successful!")
        print(f"Output is located at: {project_root / 'dist' / app_name}")

    except subprocess.CalledProcessError as e:
        print(f"\nError: Build failed with exit code {e.returncode}")
        print("Ensure 'pyinstaller' is installed: pip install -e .[build]")
        sys.exit(1)
    except FileNotFoundError:
        print("\nError: PyInstaller not found.")
        print("Please install it: pip install -e .[build]")
        sys.exit(1)

if __name__ == "__main__":
    main()
