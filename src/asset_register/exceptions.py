class AssetRegisterError(Exception):
    """Base class for asset-register errors."""


class AssetNotFoundError(AssetRegisterError):
    def __init__(self, asset_ref: str):
        self.asset_ref = asset_ref
        super().__init__(f"Asset '{asset_ref}' not found")


class CategoryNotFoundError(AssetRegisterError):
    def __init__(self, category_id: str):
        self.category_id = category_id
        super().__init__(f"Category '{category_id}' not found")


class DuplicateAssetNumberError(AssetRegisterError):
    def __init__(self, asset_number: str):
        self.asset_number = asset_number
        super().__init__(f"Asset number '{asset_number}' is already registered")


class ComponentAlreadyDisposedError(AssetRegisterError):
    def __init__(self, component_id: str):
        self.component_id = component_id
        super().__init__(f"Component '{component_id}' has already been disposed")


class ComponentNotFoundError(AssetRegisterError):
    def __init__(self, asset_id: str, component_id: str):
        self.asset_id = asset_id
        self.component_id = component_id
        super().__init__(f"Component '{component_id}' not found on asset '{asset_id}'")


class ImportFileError(AssetRegisterError):
    """Raised when an import spreadsheet cannot be read."""
