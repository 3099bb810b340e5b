"""
Linkage Benchmark Runner.

Builds every linkage strategy on a grid of synthetic datasets and target
cluster counts, and collects runtime, merge statistics and validation metrics
into a single results table.

For each task it:
1. Generates (or reuses) a Gaussian-blob dataset with known classes.
2. Builds an AgglomerativeClusterer with the task's linkage and target.
3. Records runtime, number of merges, last merge distance and inversions.
4. Computes ARI, purity, F-measure, Davies-Bouldin and silhouette.
5. For linkages that support it, classifies a held-out split of the data.

Results are written to results/linkage_benchmark_<timestamp>.csv.
"""

import os
import time
import datetime
import numpy as np
import pandas as pd
from tqdm import tqdm
from sklearn.datasets import make_blobs
from sklearn.metrics import adjusted_rand_score

from agglomerative import AgglomerativeClusterer, DistanceMatrix, InvalidConfigurationError
from agglomerative.linkage import LINKAGES
from utils.clustering_metrics import compute_clustering_metrics

# ---------------------------------------------------------
# CONFIGURATION
# ---------------------------------------------------------
RUN_CONFIG = {
    "datasets": {
        "blobs-small": True,
        "blobs-medium": True,
        "blobs-wide": True
    },
    "linkages": {name: True for name in LINKAGES},
    "distance_functions": ["default", "euclidean"]
}

DATASETS_CONFIG = {
    "blobs-small": {"n_samples": 60, "centers": 3, "n_features": 2, "cluster_std": 0.8},
    "blobs-medium": {"n_samples": 200, "centers": 4, "n_features": 2, "cluster_std": 1.0},
    "blobs-wide": {"n_samples": 150, "centers": 5, "n_features": 8, "cluster_std": 1.5},
}

N_CLUSTERS_LIST = list(range(2, 7))
HOLDOUT_FRACTION = 0.1
RANDOM_STATE = 42
RESULTS_DIR = "results"


# ---------------------------------------------------------
# HELPERS
# ---------------------------------------------------------
def generate_task_list():
    tasks = []
    for ds_name, ds_enabled in RUN_CONFIG["datasets"].items():
        if not ds_enabled: continue
        for linkage, link_enabled in RUN_CONFIG["linkages"].items():
            if not link_enabled: continue
            for distance in RUN_CONFIG["distance_functions"]:
                for k in N_CLUSTERS_LIST:
                    tasks.append({
                        "dataset": ds_name, "linkage": linkage,
                        "distance": distance, "n_clusters": k
                    })
    return tasks


def load_dataset(ds_name):
    """Generates a blob dataset and splits off a held-out part for classification."""
    X, y = make_blobs(random_state=RANDOM_STATE, **DATASETS_CONFIG[ds_name])
    n_holdout = max(1, int(len(X) * HOLDOUT_FRACTION))
    return X[n_holdout:], y[n_holdout:], X[:n_holdout], y[:n_holdout]


def run_linkage_once(X, y, X_holdout, y_holdout, task):
    start = time.perf_counter()
    model = AgglomerativeClusterer(
        n_clusters=task["n_clusters"],
        linkage=task["linkage"],
        distance_function=task["distance"],
        record_history=True
    )
    labels = model.fit_predict(X)
    runtime = time.perf_counter() - start

    distances = DistanceMatrix.initialize(X, model.distance_function).to_square()

    res = {
        "dataset": task["dataset"],
        "linkage": task["linkage"],
        "distance": task["distance"],
        "n_clusters": task["n_clusters"],
        "runtime_sec": runtime,
        "n_merges": model.n_merges_,
        "last_merge_distance": model.merge_distances_[-1] if model.merge_distances_ else 0.0,
        "inversions": model.dendrogram_.has_inversions(),
    }
    res.update(compute_clustering_metrics(X, y, labels, distances=distances))

    if model.supports_classification:
        predicted = model.predict(X_holdout)
        res["holdout_ari"] = adjusted_rand_score(y_holdout, predicted)
    else:
        res["holdout_ari"] = np.nan
    return res


def main():
    session_id = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    os.makedirs(RESULTS_DIR, exist_ok=True)

    print(f"Linkage Benchmark Started: {session_id}")
    all_tasks = generate_task_list()

    results = []
    data_cache = {}

    pbar = tqdm(all_tasks, unit="build")
    for task in pbar:
        ds_name = task["dataset"]
        pbar.set_description(f"{ds_name} | {task['linkage']} | {task['distance']} | k={task['n_clusters']}")

        if ds_name not in data_cache:
            data_cache[ds_name] = load_dataset(ds_name)
        X, y, X_holdout, y_holdout = data_cache[ds_name]

        try:
            results.append(run_linkage_once(X, y, X_holdout, y_holdout, task))
        except InvalidConfigurationError as e:
            pbar.write(f"Skipped: {task} - {e}")

    if not results:
        print("No results were produced.")
        return

    df = pd.DataFrame(results)
    output_path = os.path.join(RESULTS_DIR, f"linkage_benchmark_{session_id}.csv")
    df.to_csv(output_path, index=False)

    summary = (
        df.groupby("linkage")[["ari", "silhouette", "runtime_sec"]]
        .mean()
        .sort_values("ari", ascending=False)
    )
    print("\nMean scores per linkage:")
    print(summary.to_string(float_format=lambda v: f"{v:.4f}"))
    print(f"\nBenchmark Complete. Data saved in {output_path}")


if __name__ == "__main__":
    main()
