"""
Spark Split Partitioner

Applies split plans to tile DataFrames in Spark: attaches the row-major tile
key, derives the tile extent of a DataFrame, and lays rows out so that each
Spark partition holds exactly the tiles of one pre-split storage region,
sorted by key, ready for a bulk-load writer.
"""

from bisect import bisect_left
from typing import Optional, Sequence, Tuple

from pyspark import SparkConf
from pyspark.sql import SparkSession, DataFrame
from pyspark.sql import functions as F
from pyspark.sql.types import IntegerType
import structlog

from ..utils.config import Config
from ..monitoring.metrics import MetricsCollector
from ..tiling.tile_extent import TileExtent
from ..tiling.tms_tiling import num_x_tiles
from ..splitting.planner import SplitPlanner
from ..splitting.split_plan import SplitPlan


TILE_KEY_COLUMN = "tile_id"
PARTITION_COLUMN = "partition_index"


def partition_index(tile_key: int, splits: Sequence[int]) -> int:
    """
    Index of the partition a tile key falls into.

    A split key is the last key of its partition, so this is the number of
    split keys strictly below ``tile_key``.
    """
    return bisect_left(splits, tile_key)


class SparkSplitPartitioner:
    """
    Spark helpers that lay tile DataFrames out along split keys.
    """

    def __init__(
        self,
        config: Config,
        spark_session: Optional[SparkSession] = None,
        planner: Optional[SplitPlanner] = None,
        metrics_collector: Optional[MetricsCollector] = None
    ):
        """
        Initialize the partitioner.

        Args:
            config: Configuration object containing Spark and sizing settings
            spark_session: Optional existing Spark session to reuse
            planner: Optional split planner; built from config when omitted
            metrics_collector: Optional metrics collector for monitoring
        """
        self.config = config
        self.logger = structlog.get_logger(component="SparkSplitPartitioner")
        self.metrics = metrics_collector or MetricsCollector(
            enable_prometheus=config.monitoring.enable_prometheus,
            prometheus_gateway=config.monitoring.prometheus_gateway,
            namespace=config.monitoring.namespace
        )
        self.planner = planner or SplitPlanner(config, self.metrics)

        if spark_session:
            self.spark = spark_session
            self.logger.info("Using provided Spark session")
        else:
            self.spark = self._create_spark_session()
            self.logger.info("Created new Spark session", app_name=config.spark.app_name)

    def _create_spark_session(self) -> SparkSession:
        """Create a Spark session from the configured settings."""
        spark_config = self.config.spark

        conf = SparkConf()
        conf.set("spark.app.name", spark_config.app_name)
        conf.set("spark.master", spark_config.master)
        conf.set("spark.executor.memory", spark_config.executor_memory)
        conf.set("spark.driver.memory", spark_config.driver_memory)
        conf.set("spark.sql.shuffle.partitions", str(spark_config.shuffle_partitions))

        # Keep the partition layout produced by partition_by_splits
        conf.set("spark.sql.adaptive.enabled", "false")

        spark = SparkSession.builder.config(conf=conf).getOrCreate()
        spark.sparkContext.setLogLevel(spark_config.log_level)

        return spark

    def with_tile_keys(
        self,
        df: DataFrame,
        zoom: int,
        x_col: str = "x",
        y_col: str = "y"
    ) -> DataFrame:
        """Add the row-major tile key column for ``zoom``."""
        return df.withColumn(
            TILE_KEY_COLUMN,
            F.col(y_col).cast("long") * F.lit(num_x_tiles(zoom)) + F.col(x_col).cast("long")
        )

    def tile_extent_of(self, df: DataFrame, x_col: str = "x", y_col: str = "y") -> TileExtent:
        """Tile extent spanned by the rows of a DataFrame."""
        bounds = df.agg(
            F.min(x_col).alias("xmin"),
            F.min(y_col).alias("ymin"),
            F.max(x_col).alias("xmax"),
            F.max(y_col).alias("ymax")
        ).first()

        if bounds is None or bounds["xmin"] is None:
            raise ValueError("Cannot derive a tile extent from an empty DataFrame")

        return TileExtent(
            xmin=int(bounds["xmin"]),
            ymin=int(bounds["ymin"]),
            xmax=int(bounds["xmax"]),
            ymax=int(bounds["ymax"])
        )

    def plan_for_dataframe(
        self,
        df: DataFrame,
        zoom: int,
        tile_size_bytes: Optional[int] = None,
        x_col: str = "x",
        y_col: str = "y"
    ) -> SplitPlan:
        """Split plan for the extent covered by a tile DataFrame."""
        tile_extent = self.tile_extent_of(df, x_col, y_col)
        return self.planner.plan(tile_extent, zoom, tile_size_bytes)

    def with_partition_index(
        self,
        df: DataFrame,
        splits: Sequence[int],
        key_col: str = TILE_KEY_COLUMN
    ) -> DataFrame:
        """Add the index of the storage partition each tile belongs to."""
        split_keys = self.spark.sparkContext.broadcast(list(splits))

        @F.udf(returnType=IntegerType())
        def lookup_partition(tile_key):
            if tile_key is None:
                return None
            return partition_index(tile_key, split_keys.value)

        return df.withColumn(PARTITION_COLUMN, lookup_partition(F.col(key_col)))

    def partition_by_splits(
        self,
        df: DataFrame,
        splits: Sequence[int],
        key_col: str = TILE_KEY_COLUMN
    ) -> DataFrame:
        """
        Lay a keyed tile DataFrame out one Spark partition per storage region.

        Partition ``i`` holds the tiles between split ``i - 1`` (exclusive)
        and split ``i`` (inclusive), sorted by tile key.
        """
        num_partitions = len(splits) + 1
        indexed = self.with_partition_index(df, splits, key_col)
        index_position = indexed.columns.index(PARTITION_COLUMN)

        laid_out = (
            indexed.rdd
            .keyBy(lambda row: row[index_position])
            .partitionBy(num_partitions, lambda index: index)
            .values()
        )

        result = self.spark.createDataFrame(laid_out, schema=indexed.schema)
        result = result.sortWithinPartitions(key_col)

        self.metrics.increment_counter(
            'spark_partition_jobs_total',
            labels={'operation': 'partition_by_splits'}
        )
        self.logger.info(
            "Partitioned DataFrame along split keys",
            split_count=len(splits),
            num_partitions=num_partitions
        )

        return result

    def prepare_for_bulk_load(
        self,
        df: DataFrame,
        zoom: int,
        tile_size_bytes: Optional[int] = None,
        x_col: str = "x",
        y_col: str = "y"
    ) -> Tuple[DataFrame, SplitPlan]:
        """
        Key, plan and partition a tile DataFrame in one pass.

        Returns:
            ``(partitioned_df, plan)``; the plan's splits are the pre-split
            keys for the target table
        """
        plan = self.plan_for_dataframe(df, zoom, tile_size_bytes, x_col, y_col)
        keyed = self.with_tile_keys(df, zoom, x_col, y_col)
        return self.partition_by_splits(keyed, plan.splits), plan

    def shutdown(self) -> None:
        """Stop the Spark session and flush final metrics."""
        try:
            if self.spark:
                self.spark.stop()
                self.logger.info("Spark session stopped")
        except Exception as e:
            self.logger.error("Error stopping Spark session", error=str(e))

        self.metrics.cleanup()
