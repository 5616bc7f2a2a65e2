"""
Background import jobs: submit a batch, poll its progress.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from compendium.api.deps import get_batch_importer, get_job_store
from compendium.schemas.artwork_index import StoreBatchRequest
from compendium.schemas.job import ImportJobOut
from compendium.services.batch_importer import BatchImporter, ImportJob, JobStore

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post("", response_model=ImportJobOut, status_code=202)
async def submit_import_job(
    body: StoreBatchRequest,
    background_tasks: BackgroundTasks,
    importer: BatchImporter = Depends(get_batch_importer),
    job_store: JobStore = Depends(get_job_store),
):
    """Queue a batch import and return its job handle immediately."""
    job = ImportJob(total=len(body.records))
    await job_store.save(job)
    background_tasks.add_task(
        importer.run_job,
        job,
        body.records,
        type=body.type,
        indexing_wallet=body.indexing_wallet,
    )
    return ImportJobOut(**job.to_dict())


@router.get("/{job_id}", response_model=ImportJobOut)
async def get_import_job(job_id: str, job_store: JobStore = Depends(get_job_store)):
    job = await job_store.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return ImportJobOut(**job.to_dict())
