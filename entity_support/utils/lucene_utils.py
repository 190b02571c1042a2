"""
Lucene JVM initialization and class loading through PyJnius.

initialize_lucene() must run before anything imports ``jnius``: the JVM
classpath can only be set once, before the JVM starts.
"""

import os
import logging
from typing import Dict

import jnius_config

logger = logging.getLogger(__name__)

LUCENE_VERSION = "10.1.0"

REQUIRED_JARS = [
    f'lucene-core-{LUCENE_VERSION}.jar',
    f'lucene-analysis-common-{LUCENE_VERSION}.jar',
    f'lucene-queryparser-{LUCENE_VERSION}.jar',
    f'lucene-memory-{LUCENE_VERSION}.jar'
]

LUCENE_CLASSES = {
    # Store / index
    'FSDirectory': 'org.apache.lucene.store.FSDirectory',
    'ByteBuffersDirectory': 'org.apache.lucene.store.ByteBuffersDirectory',
    'Paths': 'java.nio.file.Paths',
    'DirectoryReader': 'org.apache.lucene.index.DirectoryReader',
    'IndexWriter': 'org.apache.lucene.index.IndexWriter',
    'IndexWriterConfig': 'org.apache.lucene.index.IndexWriterConfig',
    'Term': 'org.apache.lucene.index.Term',

    # Documents
    'Document': 'org.apache.lucene.document.Document',
    'StringField': 'org.apache.lucene.document.StringField',
    'TextField': 'org.apache.lucene.document.TextField',
    'FieldStore': 'org.apache.lucene.document.Field$Store',

    # Search
    'IndexSearcher': 'org.apache.lucene.search.IndexSearcher',
    'TermQuery': 'org.apache.lucene.search.TermQuery',
    'BoostQuery': 'org.apache.lucene.search.BoostQuery',
    'BooleanQueryBuilder': 'org.apache.lucene.search.BooleanQuery$Builder',
    'BooleanClauseOccur': 'org.apache.lucene.search.BooleanClause$Occur',

    # Similarities
    'BM25Similarity': 'org.apache.lucene.search.similarities.BM25Similarity',
    'LMDirichletSimilarity': 'org.apache.lucene.search.similarities.LMDirichletSimilarity',
    'LMJelinekMercerSimilarity': 'org.apache.lucene.search.similarities.LMJelinekMercerSimilarity',

    # Analysis
    'EnglishAnalyzer': 'org.apache.lucene.analysis.en.EnglishAnalyzer',
    'StandardAnalyzer': 'org.apache.lucene.analysis.standard.StandardAnalyzer',
    'WhitespaceAnalyzer': 'org.apache.lucene.analysis.core.WhitespaceAnalyzer',
    'PerFieldAnalyzerWrapper': 'org.apache.lucene.analysis.miscellaneous.PerFieldAnalyzerWrapper',

    # Java
    'StringReader': 'java.io.StringReader',
    'HashMap': 'java.util.HashMap',
    'JavaClass': 'java.lang.Class',
}


def initialize_lucene(lucene_path: str) -> bool:
    """
    Initialize Lucene with proper classpath settings

    Args:
        lucene_path: Path to Lucene JAR files

    Returns:
        bool: True if initialization successful, False otherwise
    """
    try:
        # Prevent automatic JVM startup
        if 'CLASSPATH' in os.environ:
            del os.environ['CLASSPATH']

        lucene_path = os.path.abspath(lucene_path)

        jar_paths = []
        for jar in REQUIRED_JARS:
            full_path = os.path.join(lucene_path, jar)
            if not os.path.exists(full_path):
                raise ValueError(f"Required JAR not found: {full_path}")
            jar_paths.append(full_path)
            logger.info(f"Adding to classpath: {full_path}")

        if not jnius_config.vm_running:
            jnius_config.add_options('-Xmx4096m', '-Xms1024m')
            jnius_config.set_classpath(*jar_paths)
        else:
            logger.warning("JVM already running, classpath left unchanged")

        try:
            from jnius import autoclass
            autoclass(LUCENE_CLASSES['FSDirectory'])
            logger.info("Successfully verified Lucene class loading")
            return True
        except Exception as e:
            logger.error(f"Failed to verify Lucene setup: {e}")
            return False

    except Exception as e:
        logger.error(f"Failed to initialize Lucene: {e}")
        return False


def get_lucene_classes() -> Dict[str, object]:
    """
    Load the Lucene classes used by the Lucene backend.

    Returns:
        Mapping of short name -> JVM class
    """
    from jnius import autoclass

    return {name: autoclass(java_name) for name, java_name in LUCENE_CLASSES.items()}


def check_lucene_availability() -> bool:
    """True if the JVM is up and Lucene classes can be loaded."""
    try:
        from jnius import autoclass
        autoclass(LUCENE_CLASSES['IndexSearcher'])
        return True
    except Exception as e:
        logger.debug(f"Lucene not available: {e}")
        return False
