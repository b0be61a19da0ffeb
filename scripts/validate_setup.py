"""Validate that the inventory core is properly set up and configured."""

import asyncio
import sys
from pathlib import Path

from pydantic import ValidationError


async def check_python_version() -> bool:
    """Check if Python version is 3.11+."""
    print("Checking Python version...")

    version = sys.version_info
    if version.major < 3 or (version.major == 3 and version.minor < 11):
        print(f"  ❌ Python {version.major}.{version.minor} detected")
        print("  → Python 3.11+ required")
        return False

    print(f"  ✓ Python {version.major}.{version.minor} detected")
    return True


async def check_settings() -> bool:
    """Check that settings load from the environment."""
    print("\nChecking configuration...")

    from kitchen_inventory.config import get_settings

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"  ❌ Invalid settings: {e}")
        return False

    print(f"  ✓ Environment: {settings.environment}")
    print(f"  ✓ Oversell policy default: {settings.oversell_policy_default}")
    print(
        f"  ✓ Scans: reorder every {settings.reorder_check_interval}s, "
        f"expiration every {settings.expiration_check_interval}s"
    )
    return True


async def check_project_structure() -> bool:
    """Check if all required files exist."""
    print("\nChecking project structure...")

    required_paths = [
        "kitchen_inventory/config.py",
        "kitchen_inventory/main.py",
        "kitchen_inventory/services/recipes.py",
        "kitchen_inventory/services/ledger.py",
        "kitchen_inventory/services/batch_tracker.py",
        "kitchen_inventory/services/reorder_monitor.py",
        "kitchen_inventory/services/inventory_service.py",
        "kitchen_inventory/state/manager.py",
        "pyproject.toml",
    ]

    missing = [path for path in required_paths if not Path(path).exists()]

    if missing:
        print("  ❌ Missing files:")
        for path in missing:
            print(f"     - {path}")
        return False

    print("  ✓ All required files present")
    return True


async def check_redis() -> bool:
    """Check that the Redis settings store is reachable."""
    print("\nChecking Redis...")

    from kitchen_inventory.state.manager import StateManager

    state_manager = StateManager()
    try:
        await state_manager.connect()
        await state_manager.redis_client.ping()
    except Exception as e:
        print(f"  ❌ Redis not reachable at {state_manager.redis_url}: {e}")
        print("  → Start Redis or set REDIS_URL")
        return False
    finally:
        await state_manager.disconnect()

    print(f"  ✓ Redis reachable at {state_manager.redis_url}")
    return True


async def main() -> None:
    """Run all validation checks."""
    print("\n" + "=" * 60)
    print("  Kitchen Inventory Core - Setup Validation")
    print("=" * 60 + "\n")

    checks = [
        ("Python Version", check_python_version),
        ("Configuration", check_settings),
        ("Project Structure", check_project_structure),
        ("Redis", check_redis),
    ]

    results = []
    for name, check in checks:
        try:
            result = await check()
            results.append((name, result))
        except Exception as e:
            print(f"  ❌ Error during {name} check: {e}")
            results.append((name, False))

    print("\n" + "=" * 60)
    print("  Validation Summary")
    print("=" * 60)

    all_passed = True
    for name, passed in results:
        status = "✓" if passed else "❌"
        print(f"  {status} {name}")
        if not passed:
            all_passed = False

    print("=" * 60)

    if all_passed:
        print("\n✅ All checks passed! System is ready.")
        print("\nNext steps:")
        print("  1. Seed data: python scripts/seed_data.py")
        print("  2. Run monitors: python -m kitchen_inventory.main")
    else:
        print("\n❌ Some checks failed. Please fix the issues above.")
        sys.exit(1)

    print()


if __name__ == "__main__":
    asyncio.run(main())
