__version__ = "0.1.0"

from .store import LexiconStore as LexiconStore

from .exceptions import (
    LexiconStoreError as LexiconStoreError,
    ValidationError as ValidationError,
    DataImportError as DataImportError,
    EntityNotFoundError as EntityNotFoundError,
    RelationError as RelationError,
    SourceUnavailableError as SourceUnavailableError,
    DatabaseError as DatabaseError,
)

from .models import (
    Entry as Entry,
    Sense as Sense,
    Idiom as Idiom,
    PhrasalVerbGroup as PhrasalVerbGroup,
    Example as Example,
    RootKind as RootKind,
    RootLink as RootLink,
    WordDocument as WordDocument,
    ImportResult as ImportResult,
    DirectoryImportResult as DirectoryImportResult,
    SearchPage as SearchPage,
    IdiomPage as IdiomPage,
    ListPage as ListPage,
    LookupResult as LookupResult,
)

from .normalize import (
    canonicalize as canonicalize,
    counterpart as counterpart,
)

from .summary import (
    build_variants as build_variants,
    build_top_symbol as build_top_symbol,
    build_parts_of_speech as build_parts_of_speech,
)

from .merge import (
    import_batch as import_batch,
    import_directory as import_directory,
    import_status as import_status,
)

from .roots import (
    assign_root as assign_root,
    get_by_root as get_by_root,
)

from .sources import (
    PageSource as PageSource,
    WordnetSource as WordnetSource,
)

from .lookup import lookup as lookup
