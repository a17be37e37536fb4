from pkgutil import iter_modules
from pathlib import Path
from importlib import import_module

# Automatically load all modules in the `depwalk` package,
# so all GraphSources will auto-register themselves:
package_dir = Path(__file__).resolve().parent
for (_, module_name, _) in iter_modules([str(package_dir)]):
    if module_name != "__main__":
        import_module(f"{__name__}.{module_name}")
